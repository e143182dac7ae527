"""Members (donors) and member imports"""
