"""Pipeline stages: ingestion, imputation, standardization and reporting."""
