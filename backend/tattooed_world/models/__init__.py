"""
ORM models. Importing this package registers every table on ``Base.metadata``
(Alembic autogenerate and the test suite's ``create_all`` depend on it).
"""

from tattooed_world.models.artist import (
    ArtistProfile,
    Service,
    Specialty,
    VerificationStatus,
    artist_services,
    artist_specialties,
)
from tattooed_world.models.audit import AdminAction, GeocodeCache
from tattooed_world.models.content import ArtistMessage, Favorite, Flash, GalleryItem, Review
from tattooed_world.models.studio import GeocodeStatus, Studio, StudioArtist, StudioRole
from tattooed_world.models.user import ADMIN_ROLES, ARTIST_ROLES, User, UserRole

__all__ = [
    "ADMIN_ROLES",
    "ARTIST_ROLES",
    "AdminAction",
    "ArtistMessage",
    "ArtistProfile",
    "Favorite",
    "Flash",
    "GalleryItem",
    "GeocodeCache",
    "GeocodeStatus",
    "Review",
    "Service",
    "Specialty",
    "Studio",
    "StudioArtist",
    "StudioRole",
    "User",
    "UserRole",
    "VerificationStatus",
    "artist_services",
    "artist_specialties",
]
