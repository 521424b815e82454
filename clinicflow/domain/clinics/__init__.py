"""Clinic domain - clinic profile and working-hours settings"""
