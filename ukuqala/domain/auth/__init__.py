"""Auth domain - doctor accounts and session tokens"""
