# services/llm_service.py
import requests
import logging
from typing import Any, Dict, List, Optional

from config import settings
from core.errors import GatewayError

logger = logging.getLogger(settings.LOGGER_NAME)

class LLMService:
    """A client for an Ollama-compatible LLM HTTP API (generation + embeddings)."""

    def __init__(
        self,
        base_url: str = settings.LLM_BASE_URL,
        model: str = settings.LLM_MODEL_NAME,
        embedding_model: str = settings.EMBEDDING_MODEL_NAME,
        api_key: str = settings.LLM_API_KEY,
        timeout: float = settings.CATEGORIZATION_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        """
        Initializes the LLMService.

        Args:
            base_url: The base URL of the LLM API.
            model: The name of the generation model.
            embedding_model: The name of the embedding model.
            api_key: Optional bearer token for hosted providers.
            timeout: The request timeout in seconds.
            session: Optional requests session (connection reuse, testing).
        """
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.embedding_model = embedding_model
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        if self.api_key:
            return {"Authorization": f"Bearer {self.api_key}"}
        return {}

    def _post(self, endpoint: str, payload: Dict[str, Any], timeout: Optional[float]) -> Dict[str, Any]:
        url = f"{self.base_url}{endpoint}"
        timeout = timeout or self.timeout
        try:
            response = self.session.post(url, json=payload, headers=self._headers(), timeout=timeout)
            response.raise_for_status()  # Raises an HTTPError for bad responses (4xx or 5xx)
            return response.json()
        except requests.exceptions.Timeout as e:
            raise GatewayError(f"LLM request timed out after {timeout} seconds") from e
        except requests.exceptions.ConnectionError as e:
            raise GatewayError(f"Cannot connect to LLM at {self.base_url}. Is the service running?") from e
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "unknown"
            raise GatewayError(f"LLM service returned an error: {status}") from e
        except ValueError as e:
            raise GatewayError("LLM service returned a non-JSON body") from e
        except requests.exceptions.RequestException as e:
            raise GatewayError(f"LLM request failed: {e}") from e

    def generate(self, prompt: str, json_mode: bool = True, timeout: Optional[float] = None) -> str:
        """
        Sends a prompt to the LLM and returns the raw response text.

        Raises GatewayError on transport failure or an empty response.
        """
        if not prompt or not prompt.strip():
            raise GatewayError("Empty prompt provided")

        payload: Dict[str, Any] = {
            "model": self.model,
            "prompt": prompt,
            "stream": False,
        }
        if json_mode:
            payload["format"] = "json"

        logger.debug(f"Sending prompt to LLM model '{self.model}'...")
        result = self._post("/api/generate", payload, timeout)
        text = result.get("response") if isinstance(result, dict) else None
        if not text or not str(text).strip():
            raise GatewayError("Empty response from LLM")
        return str(text).strip()

    def embed(self, text: str, timeout: Optional[float] = None) -> List[float]:
        """
        Returns the embedding vector for a single text.

        Raises GatewayError on transport failure or a malformed response.
        """
        payload = {"model": self.embedding_model, "input": [text]}
        result = self._post("/api/embed", payload, timeout)
        embeddings = result.get("embeddings") if isinstance(result, dict) else None
        if not embeddings or not embeddings[0]:
            raise GatewayError("LLM response does not contain valid embeddings")
        vector = embeddings[0]
        try:
            return [float(v) for v in vector]
        except (TypeError, ValueError) as e:
            raise GatewayError("Embedding contains non-numeric values") from e
