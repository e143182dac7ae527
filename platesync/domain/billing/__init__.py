"""Subscriptions and Stripe billing"""
