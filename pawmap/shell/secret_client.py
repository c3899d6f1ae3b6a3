"""Secret Client - Imperative Shell.

Resolves configuration placeholders: ${VAR} from the environment and
${secret:NAME} from Google Cloud Secret Manager. All I/O is contained here.
"""

import logging
import os

from google.cloud import secretmanager


logger = logging.getLogger(__name__)


SECRET_PREFIX = "secret:"


def parse_placeholder(value: str) -> str | None:
    """Return the inside of a ${...} placeholder, or None if value is not one."""
    if value.startswith("${") and value.endswith("}"):
        return value[2:-1].strip()
    return None


class SecretClient:
    """Reads secrets from Google Cloud Secret Manager.

    This is part of the imperative shell - it handles secret I/O.
    """

    def __init__(self, project_id: str) -> None:
        """Initialize secret client.

        Args:
            project_id: GCP project holding the secrets
        """
        self.project_id = project_id
        self._client: secretmanager.SecretManagerServiceClient | None = None

    @property
    def client(self) -> secretmanager.SecretManagerServiceClient:
        """Lazy initialization of the Secret Manager client."""
        if self._client is None:
            self._client = secretmanager.SecretManagerServiceClient()
        return self._client

    def get_secret(self, name: str, version: str = "latest") -> str | None:
        """Fetch a secret value.

        This method performs I/O.

        Args:
            name: Secret name (not the full resource path)
            version: Secret version

        Returns:
            Secret value, or None if it cannot be read
        """
        resource = f"projects/{self.project_id}/secrets/{name}/versions/{version}"

        try:
            logger.info("Fetching secret: %s", name)
            response = self.client.access_secret_version(request={"name": resource})
            return response.payload.data.decode("UTF-8")
        except Exception as e:
            logger.error("Failed to fetch secret %s: %s", name, str(e))
            return None

    def resolve(self, value: str) -> str:
        """Resolve a ${secret:NAME} or ${VAR} placeholder.

        Values that are not placeholders, and placeholders that cannot be
        resolved, are returned unchanged.
        """
        spec = parse_placeholder(value)
        if spec is None:
            return value

        if spec.startswith(SECRET_PREFIX):
            secret = self.get_secret(spec[len(SECRET_PREFIX):])
            return secret if secret is not None else value

        return os.environ.get(spec) or value
