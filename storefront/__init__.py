"""Storefront and in-store pickup reservations"""
