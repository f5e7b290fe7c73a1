# Services package init
"""
Tattooed World Backend — Services Layer
=========================================

Business rules between routes (HTTP) and the database. Each module exposes
one module-level singleton used by the routes, the CLI and the tests.

Service Inventory:
    - auth_service / security / mail_service: accounts, JWTs, outgoing mail
    - artist_service, studio_service, flash_service: directory content
    - review_service, favorite_service, message_service: client and artist interaction
    - admin_service (+ record_action), catalog_service: back office and audit log
    - geocoder, geocode_cache, geocoding_service, geocoding_batch: coordinates
    - resilience: circuit breaker guarding the geocoding provider

Services only flush(); the request session (database.get_db_session) owns
commit and rollback. The geocoding batch is the exception: it opens its own
session and commits per studio.
"""
