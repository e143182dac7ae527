"""Cross-tenant global admin portal"""
