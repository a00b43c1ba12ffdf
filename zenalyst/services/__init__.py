"""
Service layer helpers for the Zenalyst analytics API.

Modules:
    aggregation  - Ranking, revenue share, pagination and growth statistics
    data_layer   - MongoDB access and record normalisation
    formatting   - Rounding plus currency and percentage strings
    reporting    - Per-endpoint report builders and the dashboard summary
    analysis     - Predefined prompts and intent-based analysis
"""
