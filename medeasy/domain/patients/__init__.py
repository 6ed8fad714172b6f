"""Patient Domain - registration, profiles and admin patient management"""
