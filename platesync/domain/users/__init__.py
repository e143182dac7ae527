"""Church staff users and self-service profile"""
