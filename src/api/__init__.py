"""HTTP boundary: ERP API payload schemas and client."""
