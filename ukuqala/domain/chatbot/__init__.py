"""Chatbot domain - Mistral medical assistant for doctors"""
