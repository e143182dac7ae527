"""Batches (counts) and the attestation workflow"""
