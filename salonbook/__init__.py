"""SalonBook API - multi-tenant salon appointment booking backend"""
