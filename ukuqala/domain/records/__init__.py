"""Records domain - patient records, uploads and public lookup"""
