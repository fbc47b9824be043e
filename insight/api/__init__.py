"""External API integrations - Sightengine detection client."""

from .sightengine import SightengineAPI, SightengineAPIError, transform_response

__all__ = ["SightengineAPI", "SightengineAPIError", "transform_response"]
