# ============================================================================
# src/medical_structuring/constants/field_synonyms.py
# ============================================================================
"""
Field Synonym Tables

Ordered alternative spellings per logical field. Lookups try each candidate
in order and return the first non-empty match, so adding a spelling variant
is a data change here rather than a code change in the processors.

Dotted candidates ("data.tests") walk into nested mappings.
"""

# ----------------------------------------------------------------------------
# Lab reports
# ----------------------------------------------------------------------------
TEST_ARRAY_FIELDS = (
    "tests", "test_results", "testResults", "lab_tests", "results",
    "lab_results", "laboratory_results", "data.tests", "data.test_results",
)

PATIENT_BLOCK_FIELDS = (
    "patient", "patient_info", "patientInfo", "demographics",
    "data.patient", "patient_data",
)

PATIENT_FIELDS = {
    "name": ("name", "patient_name", "full_name", "patientName"),
    "birth_date": ("date_of_birth", "dob", "birth_date", "dateOfBirth", "birthDate"),
    "patient_id": ("id", "patient_id", "mrn", "medical_record_number", "patientId"),
    "age": ("age", "patient_age"),
    "gender": ("gender", "sex", "patient_gender", "patient_sex"),
}

# Same fields when they sit at the document root instead of a patient block
ROOT_PATIENT_FIELDS = {
    "name": ("patient_name", "patientName"),
    "birth_date": ("patient_dob", "date_of_birth", "dob"),
    "patient_id": ("patient_id", "mrn", "medical_record_number"),
    "age": ("patient_age", "age"),
    "gender": ("patient_gender", "patient_sex", "gender", "sex"),
}

FACILITY_FIELDS = (
    "facility", "facility_name", "lab_name", "laboratory", "clinic",
    "hospital", "data.facility",
)

ORDERING_PHYSICIAN_FIELDS = (
    "ordering_physician", "physician", "doctor", "ordering_doctor",
    "orderingPhysician", "referring_physician",
)

COLLECTION_DATE_FIELDS = (
    "collection_date", "date_collected", "sample_date", "collectionDate",
    "specimen_date",
)

REPORT_DATE_FIELDS = (
    "report_date", "date_reported", "result_date", "reportDate", "date",
)

# ----------------------------------------------------------------------------
# Individual test entries
# ----------------------------------------------------------------------------
TEST_NAME_FIELDS = ("name", "test_name", "test", "testName", "parameter")
TEST_VALUE_FIELDS = ("value", "result", "level", "measurement", "observed_value", "results")
TEST_UNIT_FIELDS = ("unit", "units")
TEST_RANGE_FIELDS = (
    "reference_range", "normal_range", "range", "ref_range", "referenceRange",
    "reference",
)
TEST_NOTES_FIELDS = ("notes", "comments", "interpretation", "comment", "remarks")
TEST_STATUS_FIELDS = ("status", "flag", "abnormal_flag", "result_flag")

PROFILE_NAME_FIELDS = (
    "profile", "profile_name", "panel", "panel_name", "test_name", "name", "test",
)
SUB_TEST_ARRAY_FIELDS = ("subTests", "sub_tests", "tests", "components", "parameters")

# Boolean flag fields, strongest first
STATUS_BOOLEAN_FIELDS = (
    (("critical", "is_critical"), "critical"),
    (("high", "is_high"), "high"),
    (("low", "is_low"), "low"),
    (("abnormal", "is_abnormal"), "abnormal"),
)

# ----------------------------------------------------------------------------
# Prescriptions
# ----------------------------------------------------------------------------
MEDICATION_ARRAY_FIELDS = (
    "medications", "medicines", "prescriptions", "drugs", "medication_list",
    "prescribed_medications", "rx", "data.medications",
)

MEDICATION_FIELDS = {
    "name": ("name", "medication", "medication_name", "drug", "drug_name", "medicine"),
    "dosage": ("dosage", "dose", "strength"),
    "frequency": ("frequency", "freq", "schedule"),
    "duration": ("duration", "days", "course"),
    "instructions": ("instructions", "directions", "sig", "notes"),
    "route": ("route", "route_of_administration"),
    "quantity": ("quantity", "qty", "dispense_quantity"),
    "refills": ("refills", "refills_allowed", "repeats"),
}

PRESCRIBER_FIELDS = (
    "prescriber", "doctor", "physician", "prescribing_doctor", "provider",
    "prescribed_by",
)

PHARMACY_FIELDS = ("pharmacy", "pharmacy_name", "dispensing_pharmacy")

PRESCRIPTION_DATE_FIELDS = ("prescription_date", "prescribed_date", "date", "issue_date")

# ----------------------------------------------------------------------------
# Radiology
# ----------------------------------------------------------------------------
STUDY_BLOCK_FIELDS = ("study", "examination", "exam")

STUDY_FIELDS = {
    "study_type": ("study_type", "type", "study", "exam", "examination", "procedure"),
    "body_part": ("body_part", "bodyPart", "region", "body_site"),
    "modality": ("modality",),
}

FINDINGS_FIELDS = ("findings", "finding", "observations", "report_findings")
IMPRESSION_FIELDS = ("impression", "conclusion", "summary", "diagnosis", "opinion")
RADIOLOGIST_FIELDS = ("radiologist", "reported_by", "reading_physician", "physician", "doctor")
STUDY_DATE_FIELDS = ("study_date", "exam_date", "examination_date", "scan_date", "date")

# ----------------------------------------------------------------------------
# Vitals
# ----------------------------------------------------------------------------
VITALS_ARRAY_FIELDS = (
    "vitals", "vital_signs", "vitalSigns", "measurements", "data.vitals",
)

VITAL_FIELDS = {
    "type": ("type", "name", "vital", "vital_type", "measurement"),
    "value": ("value", "result", "reading"),
    "unit": ("unit", "units"),
    "timestamp": ("timestamp", "time", "recorded_at", "date", "measured_at"),
    "notes": ("notes", "comments"),
}

# ----------------------------------------------------------------------------
# General records
# ----------------------------------------------------------------------------
GENERAL_DATE_FIELDS = ("date", "record_date", "visit_date", "report_date", "document_date")
GENERAL_PROVIDER_FIELDS = ("provider", "doctor", "physician", "author", "clinician")

# Keys that never become general-record sections
SECTION_SKIP_KEYS = ("extracted_text",)

# ----------------------------------------------------------------------------
# Subject profile (upstream person profile → Patient)
# ----------------------------------------------------------------------------
PROFILE_FIELDS = {
    "first_name": ("first_name", "firstName", "given_name"),
    "last_name": ("last_name", "lastName", "family_name", "surname"),
    "full_name": ("full_name", "name", "display_name"),
    "gender": ("gender", "sex"),
    "birth_date": ("date_of_birth", "dob", "birth_date", "dateOfBirth"),
    "phone": ("phone_number", "phone", "mobile"),
    "address": ("address",),
    "national_id": ("abha_id", "abhaId", "health_id"),
    "emergency_contact_name": ("emergency_contact_name", "emergency_contact"),
    "emergency_contact_phone": ("emergency_contact_phone",),
}

# ----------------------------------------------------------------------------
# Plain-text salvage ("Label: value" lines and markdown table headers)
# ----------------------------------------------------------------------------
TEXT_FIELD_LABELS = {
    "name": ("patient name", "name of patient", "patient", "name"),
    "birth_date": ("date of birth", "dob", "birth date"),
    "patient_id": ("patient id", "mrn", "registration no", "uhid", "lab no", "id"),
    "age": ("age",),
    "gender": ("gender", "sex"),
    "facility": ("lab name", "laboratory", "facility", "hospital", "clinic"),
    "ordering_physician": (
        "ref dr", "referring doctor", "referred by", "ordering physician",
        "ordering provider", "consultant", "physician", "doctor",
    ),
    "report_date": ("report date", "reported on", "date of report", "print date"),
    "collection_date": ("collection date", "collected on", "sample date", "sample collected on"),
}

TABLE_COLUMN_LABELS = {
    "test_name": ("test name", "test", "investigation", "parameter", "test description", "analyte"),
    "result": ("result", "value", "observed value", "results", "observation"),
    "unit": ("units", "unit"),
    "reference_range": (
        "reference range", "biological reference interval", "reference interval",
        "normal range", "bio ref interval", "ref range", "range", "reference",
    ),
    "status": ("flag", "status"),
}
