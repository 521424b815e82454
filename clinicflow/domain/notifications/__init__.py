"""Notification domain - channels, dispatcher, reminders"""
