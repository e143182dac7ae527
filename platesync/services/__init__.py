"""Adapters for documents and external services"""
