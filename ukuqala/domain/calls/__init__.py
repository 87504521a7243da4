"""Calls domain - Agora video calls and participants"""
