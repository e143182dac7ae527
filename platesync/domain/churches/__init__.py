"""Church profile, logo and email settings"""
