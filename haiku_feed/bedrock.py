"""Text generation over Amazon Bedrock."""

import asyncio
import json
import time

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from .config import BedrockConfig
from .logging_config import create_execution_logger


class BedrockTextClient:
    """Prompt in, text out, over the Bedrock runtime API.

    Supports Nova/Mistral (messages + inferenceConfig) and Llama (legacy
    prompt + max_gen_len) request formats. Every failure is logged and
    reported as ``None``.
    """

    def __init__(self, config: BedrockConfig, execution_id: str | None = None):
        self.config = config
        self.logger = create_execution_logger("bedrock", execution_id)
        self.bedrock_client = None
        self._initialize_bedrock_client()

    def _initialize_bedrock_client(self) -> None:
        """Initialize Bedrock client with error handling."""
        try:
            self.bedrock_client = boto3.client(
                "bedrock-runtime", region_name=self.config.region
            )
            self.logger.info("Initialized Bedrock client", region=self.config.region)
        except (NoCredentialsError, ClientError, BotoCoreError) as e:
            self.logger.warning(
                f"Failed to initialize Bedrock client: {e}", error=str(e)
            )
            self.bedrock_client = None

    @property
    def is_llama(self) -> bool:
        return "llama" in self.config.model_id.lower()

    def _build_request(self, prompt: str, max_tokens: int, temperature: float) -> dict:
        if self.is_llama:
            return {
                "prompt": prompt,
                "max_gen_len": max_tokens,
                "temperature": temperature,
                "top_p": 0.9,
            }
        return {
            "messages": [{"role": "user", "content": [{"text": prompt}]}],
            "inferenceConfig": {"maxTokens": max_tokens, "temperature": temperature},
        }

    def _extract_text(self, response_body: dict) -> str | None:
        if self.is_llama:
            if "generation" not in response_body:
                self.logger.error(
                    f"Llama response missing 'generation' field. Available: {list(response_body.keys())}"
                )
                return None
            return response_body["generation"]

        try:
            return response_body["output"]["message"]["content"][0].get("text", "")
        except (KeyError, IndexError, TypeError):
            self.logger.error(
                f"Response missing output/message. Available: {list(response_body.keys())}"
            )
            return None

    def complete(
        self,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str | None:
        """Run one generation call.

        Args:
            prompt: Full prompt text
            max_tokens: Output token ceiling (defaults to config)
            temperature: Sampling temperature (defaults to config)

        Returns:
            Stripped response text, or None on any failure or empty output
        """
        if not self.bedrock_client:
            self.logger.warning("Bedrock client not available")
            return None

        request_body = self._build_request(
            prompt,
            max_tokens if max_tokens is not None else self.config.max_tokens,
            temperature if temperature is not None else self.config.temperature,
        )

        try:
            start_time = time.time()
            response = self.bedrock_client.invoke_model(
                modelId=self.config.model_id,
                body=json.dumps(request_body),
                contentType="application/json",
                accept="application/json",
            )
            response_time_ms = int((time.time() - start_time) * 1000)
            response_body = json.loads(response["body"].read())
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            error_message = e.response.get("Error", {}).get("Message", "")
            self.logger.error(
                f"Bedrock client error: {error_code} - {error_message}",
                error_code=error_code,
                model_id=self.config.model_id,
            )
            return None
        except Exception as e:
            self.logger.error(f"Unexpected error calling Bedrock: {e}", error=str(e))
            return None

        text = self._extract_text(response_body)
        if not text or not text.strip():
            self.logger.warning(
                f"Empty or invalid response from model {self.config.model_id}"
            )
            return None

        self.logger.debug(
            "Bedrock response received",
            model_id=self.config.model_id,
            response_length=len(text),
            response_time_ms=response_time_ms,
        )
        return text.strip()

    async def acomplete(
        self,
        prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str | None:
        """Run ``complete`` in a worker thread so only the calling task waits."""
        return await asyncio.to_thread(self.complete, prompt, max_tokens, temperature)
