# ============================================================================
# src/medical_structuring/core/__init__.py
# ============================================================================
