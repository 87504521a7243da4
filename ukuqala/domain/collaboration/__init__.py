"""Collaboration domain - doctor to doctor case chat"""
