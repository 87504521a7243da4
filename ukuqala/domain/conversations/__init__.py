"""Conversations domain - encrypted doctor/patient messaging"""
