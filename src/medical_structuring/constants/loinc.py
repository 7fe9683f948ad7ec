# ============================================================================
# src/medical_structuring/constants/loinc.py
# ============================================================================
"""
Common LOINC Codes
- Lab tests: Hematology, Chemistry, Liver, Lipid, Thyroid, Coagulation

Keys are lowercase, underscored test names; ALIASES maps common spellings
onto those keys.
"""

import re
from typing import Optional, Tuple

LOINC_CODES = {
    # CBC
    "wbc": ("6690-2", "Leukocytes [#/volume] in Blood"),
    "rbc": ("789-8", "Erythrocytes [#/volume] in Blood"),
    "hemoglobin": ("718-7", "Hemoglobin [Mass/volume] in Blood"),
    "hematocrit": ("4544-3", "Hematocrit [Volume Fraction] of Blood"),
    "mcv": ("787-2", "MCV [Entitic volume]"),
    "mch": ("785-6", "MCH [Entitic mass]"),
    "mchc": ("786-4", "MCHC [Mass/volume]"),
    "rdw": ("788-0", "Erythrocyte distribution width"),
    "platelets": ("777-3", "Platelets [#/volume] in Blood"),
    # Chemistry
    "glucose": ("2345-7", "Glucose [Mass/volume] in Serum or Plasma"),
    "hba1c": ("4548-4", "Hemoglobin A1c/Hemoglobin.total in Blood"),
    "bun": ("3094-0", "Urea nitrogen [Mass/volume] in Serum or Plasma"),
    "creatinine": ("2160-0", "Creatinine [Mass/volume] in Serum or Plasma"),
    "egfr": ("33914-3", "Glomerular filtration rate predicted"),
    "sodium": ("2951-2", "Sodium [Moles/volume] in Serum or Plasma"),
    "potassium": ("2823-3", "Potassium [Moles/volume] in Serum or Plasma"),
    "chloride": ("2075-0", "Chloride [Moles/volume] in Serum or Plasma"),
    "calcium": ("17861-6", "Calcium [Mass/volume] in Serum or Plasma"),
    "albumin": ("1751-7", "Albumin [Mass/volume] in Serum or Plasma"),
    "total_protein": ("2885-2", "Protein [Mass/volume] in Serum or Plasma"),
    # Liver
    "bilirubin_total": ("1975-2", "Bilirubin.total [Mass/volume] in Serum or Plasma"),
    "bilirubin_direct": ("1968-7", "Bilirubin.direct [Mass/volume] in Serum or Plasma"),
    "alkaline_phosphatase": ("6768-6", "Alkaline phosphatase [Enzymatic activity/volume]"),
    "ast": ("1920-8", "Aspartate aminotransferase [Enzymatic activity/volume]"),
    "alt": ("1742-6", "Alanine aminotransferase [Enzymatic activity/volume]"),
    "ggt": ("2324-2", "Gamma glutamyl transferase [Enzymatic activity/volume]"),
    # Lipid Panel
    "cholesterol_total": ("2093-3", "Cholesterol [Mass/volume] in Serum or Plasma"),
    "triglycerides": ("2571-8", "Triglyceride [Mass/volume] in Serum or Plasma"),
    "hdl": ("2085-9", "HDL Cholesterol"),
    "ldl": ("13457-7", "LDL Cholesterol (calculated)"),
    "vldl": ("13458-5", "VLDL Cholesterol"),
    # Thyroid
    "tsh": ("3016-3", "Thyrotropin [Units/volume] in Serum or Plasma"),
    "t4_free": ("3024-7", "Thyroxine (T4) free [Mass/volume]"),
    "t3_total": ("3053-9", "Triiodothyronine (T3) [Mass/volume]"),
    # Coagulation
    "pt": ("5902-2", "Prothrombin time (PT)"),
    "inr": ("34714-6", "INR in Blood by Coagulation assay"),
    "ptt": ("14979-9", "aPTT in Platelet poor plasma"),
}

ALIASES = {
    "hb": "hemoglobin",
    "hgb": "hemoglobin",
    "haemoglobin": "hemoglobin",
    "hct": "hematocrit",
    "platelet": "platelets",
    "platelet_count": "platelets",
    "plt": "platelets",
    "white_blood_cells": "wbc",
    "total_wbc_count": "wbc",
    "wbc_count": "wbc",
    "red_blood_cells": "rbc",
    "rbc_count": "rbc",
    "fasting_glucose": "glucose",
    "blood_glucose": "glucose",
    "glucose_fasting": "glucose",
    "fasting_blood_sugar": "glucose",
    "hemoglobin_a1c": "hba1c",
    "glycated_hemoglobin": "hba1c",
    "blood_urea_nitrogen": "bun",
    "serum_creatinine": "creatinine",
    "na": "sodium",
    "k": "potassium",
    "cl": "chloride",
    "bilirubin": "bilirubin_total",
    "total_bilirubin": "bilirubin_total",
    "direct_bilirubin": "bilirubin_direct",
    "alp": "alkaline_phosphatase",
    "sgot": "ast",
    "sgpt": "alt",
    "cholesterol": "cholesterol_total",
    "total_cholesterol": "cholesterol_total",
    "hdl_cholesterol": "hdl",
    "ldl_cholesterol": "ldl",
    "vldl_cholesterol": "vldl",
    "free_t4": "t4_free",
    "ft4": "t4_free",
    "t3": "t3_total",
    "aptt": "ptt",
}

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize_test_key(name: str) -> str:
    """Lowercase a test name and collapse punctuation/spaces to underscores."""
    return _NON_ALNUM.sub("_", (name or "").lower()).strip("_")


def lookup_loinc(name: str) -> Optional[Tuple[str, str]]:
    """Return (code, display) for a test name, or None if unknown."""
    key = normalize_test_key(name)
    key = ALIASES.get(key, key)
    return LOINC_CODES.get(key)
