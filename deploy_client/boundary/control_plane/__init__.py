"""Control plane HTTP client."""

from deploy_client.boundary.control_plane.client import ControlPlaneClient

__all__ = ["ControlPlaneClient"]
