"""ClinicalTrials.gov registry access: HTTP client and record accessor."""
