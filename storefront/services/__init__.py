"""Business logic shared by the API and background jobs"""
