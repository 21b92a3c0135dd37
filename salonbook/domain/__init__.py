"""Domain packages: catalog, scheduling, coupons, bookings"""
