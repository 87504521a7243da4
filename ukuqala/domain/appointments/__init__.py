"""Appointments domain - booking and status lifecycle"""
