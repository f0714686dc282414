"""
NewsNext Backend — Services Layer
==================================

Service Inventory:
    - AdService:              listing/rotation, booking conflicts, pricing, moderation, analytics
    - PaymentService:         Stripe payment intents and webhook verification
    - EmailService:           transactional email over an HTTP email API
    - AnalyticsService:       GA4 Measurement Protocol events (fire-and-forget)
    - UserService:            admin user management and authentication
    - MemoService:            admin memos attached to user accounts
    - FileService:            upload validation and storage
    - MediaService:           media records for uploaded images and videos
    - VideoProcessingService: ffprobe metadata + ffmpeg thumbnails

Services are stateless; the database session is passed in on every call
and each module exposes a singleton instance used by the routes.
"""
