"""Registration, login and password flows"""
