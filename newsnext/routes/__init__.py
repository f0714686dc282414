"""
NewsNext Backend — API Routes Package
======================================

Route Inventory (all under /api/v1 unless noted):
    - auth.py:       POST /auth/login, GET /auth/me
    - ads.py:        /ads ... (listing, booking, moderation, tracking, payment intent)
    - payments.py:   POST /payment/webhook (Stripe, raw body)
    - users.py:      /users ... (admin user management)
    - memos.py:      /memos ... (admin memos on user accounts)
    - media.py:      /media ... (upload, video processing)
    - analytics.py:  POST /analytics/track (client event relay)
    - uploads.py:    GET /uploads/{path}   (static media, not versioned)
    - health.py:     GET /health, GET /     (not versioned)

Routes stay thin: parse the request, call a service, wrap the result
in the {success, message, data} envelope.
"""
