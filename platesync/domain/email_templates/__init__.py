"""Email templates - church and system template management"""
