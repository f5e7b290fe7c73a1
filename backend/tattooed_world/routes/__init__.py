"""
Tattooed World Backend — API Routes
=====================================

One APIRouter per resource, mounted in main.create_app():

    /api/auth         auth.py         registration, login, tokens, password flows
    /api/artists      artists.py      artist directory and profiles
    /api/studios      studios.py      studios, memberships, nearby search
    /api/flash        flash.py        flash designs
    /api/gallery      gallery.py      artist portfolios of finished work
    /api/reviews      reviews.py      client reviews of artists
    /api/favorites    favorites.py    a client's bookmarked artists
    /api/messages     messages.py     artist announcements
    /api/admin        admin.py        dashboard, moderation, audit log
    /api/geocoding    geocoding.py    geocoding, map feeds, batch control
    /api              catalog.py      specialty and service catalog
    /health           health.py       liveness and dependency status

Handlers stay thin: parse input, pick the dependency that authorizes the
caller, delegate to a service. Errors are raised as TattooedWorldError
subclasses and rendered by the handlers in main.py.
"""
