"""Chart data shaping, styling and config generation"""
