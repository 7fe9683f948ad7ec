# ============================================================================
# src/medical_structuring/constants/vital_codes.py
# ============================================================================
"""
Vital Sign Codes
- Canonical vital types → LOINC code, display, UCUM unit
- Spelling variants → canonical vital type
"""

VITAL_SIGN_CODES = {
    "blood_pressure": {"code": "85354-9", "display": "Blood pressure panel", "unit": "mm[Hg]"},
    "heart_rate": {"code": "8867-4", "display": "Heart rate", "unit": "/min"},
    "temperature": {"code": "8310-5", "display": "Body temperature", "unit": "Cel"},
    "respiratory_rate": {"code": "9279-1", "display": "Respiratory rate", "unit": "/min"},
    "oxygen_saturation": {"code": "2708-6", "display": "Oxygen saturation in Arterial blood", "unit": "%"},
    "weight": {"code": "29463-7", "display": "Body weight", "unit": "kg"},
    "height": {"code": "8302-2", "display": "Body height", "unit": "cm"},
    "bmi": {"code": "39156-5", "display": "Body mass index (BMI)", "unit": "kg/m2"},
}

VITAL_TYPE_SYNONYMS = {
    "bp": "blood_pressure",
    "blood_pressure": "blood_pressure",
    "bloodpressure": "blood_pressure",
    "heart_rate": "heart_rate",
    "heartrate": "heart_rate",
    "pulse": "heart_rate",
    "pulse_rate": "heart_rate",
    "hr": "heart_rate",
    "temperature": "temperature",
    "temp": "temperature",
    "body_temperature": "temperature",
    "respiratory_rate": "respiratory_rate",
    "respiration_rate": "respiratory_rate",
    "resp_rate": "respiratory_rate",
    "rr": "respiratory_rate",
    "oxygen_saturation": "oxygen_saturation",
    "spo2": "oxygen_saturation",
    "o2_saturation": "oxygen_saturation",
    "o2_sat": "oxygen_saturation",
    "weight": "weight",
    "body_weight": "weight",
    "height": "height",
    "body_height": "height",
    "bmi": "bmi",
    "body_mass_index": "bmi",
}
