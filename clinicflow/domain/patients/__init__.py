"""Patient domain - patient records"""
