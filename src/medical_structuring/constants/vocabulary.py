# ============================================================================
# src/medical_structuring/constants/vocabulary.py
# ============================================================================
"""
Classification Vocabulary

Two signal tables per document type:
- field indicators: key names that suggest the type, with a weight
- domain terms: words searched (word-boundary, case-insensitive) in the
  serialized decoded value
"""

from .document_types import DocumentType

# Type-specific entry arrays weigh more than generic report blocks
ENTRY_ARRAY_WEIGHT = 3
CONTEXT_FIELD_WEIGHT = 1

TYPE_FIELD_INDICATORS = {
    DocumentType.LAB: {
        "tests": ENTRY_ARRAY_WEIGHT,
        "testResults": ENTRY_ARRAY_WEIGHT,
        "test_results": ENTRY_ARRAY_WEIGHT,
        "lab_tests": ENTRY_ARRAY_WEIGHT,
        "lab_results": ENTRY_ARRAY_WEIGHT,
        "laboratory_results": ENTRY_ARRAY_WEIGHT,
        "patient": CONTEXT_FIELD_WEIGHT,
        "patientInfo": CONTEXT_FIELD_WEIGHT,
        "patient_info": CONTEXT_FIELD_WEIGHT,
        "demographics": CONTEXT_FIELD_WEIGHT,
        "collection_date": CONTEXT_FIELD_WEIGHT,
        "report_date": CONTEXT_FIELD_WEIGHT,
        "ordering_physician": CONTEXT_FIELD_WEIGHT,
        "laboratory": CONTEXT_FIELD_WEIGHT,
        "lab_name": CONTEXT_FIELD_WEIGHT,
        "profile": CONTEXT_FIELD_WEIGHT,
        "panel": CONTEXT_FIELD_WEIGHT,
        "results": CONTEXT_FIELD_WEIGHT,
    },
    DocumentType.PRESCRIPTION: {
        "medications": ENTRY_ARRAY_WEIGHT,
        "medicines": ENTRY_ARRAY_WEIGHT,
        "prescriptions": ENTRY_ARRAY_WEIGHT,
        "drugs": ENTRY_ARRAY_WEIGHT,
        "medication_list": ENTRY_ARRAY_WEIGHT,
        "prescribed_medications": ENTRY_ARRAY_WEIGHT,
        "prescriber": CONTEXT_FIELD_WEIGHT,
        "pharmacy": CONTEXT_FIELD_WEIGHT,
        "prescription_date": CONTEXT_FIELD_WEIGHT,
    },
    DocumentType.VITALS: {
        "vitals": ENTRY_ARRAY_WEIGHT,
        "vital_signs": ENTRY_ARRAY_WEIGHT,
        "vitalSigns": ENTRY_ARRAY_WEIGHT,
        "blood_pressure": CONTEXT_FIELD_WEIGHT,
        "heart_rate": CONTEXT_FIELD_WEIGHT,
        "oxygen_saturation": CONTEXT_FIELD_WEIGHT,
        "respiratory_rate": CONTEXT_FIELD_WEIGHT,
    },
    DocumentType.RADIOLOGY: {
        "impression": ENTRY_ARRAY_WEIGHT,
        "findings": CONTEXT_FIELD_WEIGHT,
        "study": CONTEXT_FIELD_WEIGHT,
        "study_type": ENTRY_ARRAY_WEIGHT,
        "modality": CONTEXT_FIELD_WEIGHT,
        "radiologist": CONTEXT_FIELD_WEIGHT,
        "study_date": CONTEXT_FIELD_WEIGHT,
    },
}

TYPE_VOCABULARY = {
    DocumentType.LAB: (
        "hemoglobin", "glucose", "cholesterol", "creatinine", "bilirubin",
        "platelet", "platelets", "wbc", "rbc", "sodium", "potassium", "chloride",
        "chemistry", "hematology", "lipid", "metabolic", "cbc", "hba1c",
        "triglycerides", "tsh", "urea", "albumin",
    ),
    DocumentType.PRESCRIPTION: (
        "tablet", "tablets", "capsule", "capsules", "syrup", "prescription",
        "prescribed", "dosage", "refills", "pharmacy", "once daily",
        "twice daily", "after meals", "before meals",
    ),
    DocumentType.VITALS: (
        "blood pressure", "heart rate", "pulse", "respiratory rate",
        "oxygen saturation", "spo2", "body temperature", "bmi", "vital signs",
    ),
    DocumentType.RADIOLOGY: (
        "x-ray", "xray", "radiograph", "ct scan", "mri", "ultrasound",
        "sonography", "radiologist", "impression", "mammogram", "contrast",
    ),
}

# Keys found inside entries when the decoded value is a bare list
ENTRY_FIELD_INDICATORS = {
    DocumentType.LAB: ("test_name", "test", "reference_range", "normal_range", "result"),
    DocumentType.PRESCRIPTION: ("medication", "medication_name", "drug", "drug_name", "dosage", "dose"),
    DocumentType.VITALS: ("vital", "vital_type", "systolic", "diastolic"),
    DocumentType.RADIOLOGY: ("impression", "modality", "study_type"),
}
