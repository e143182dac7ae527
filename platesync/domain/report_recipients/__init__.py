"""Count report recipients"""
