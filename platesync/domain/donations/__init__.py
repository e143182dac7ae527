"""Donations"""
