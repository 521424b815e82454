"""Scheduling domain - slots, availability, booking and reminder windows"""
