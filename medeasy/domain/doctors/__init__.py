"""Doctor Domain - accounts, profiles and the public directory"""
