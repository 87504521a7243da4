"""Ukuqala doctors API"""
