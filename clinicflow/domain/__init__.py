"""Domain packages: clinics, patients, scheduling, notifications"""
