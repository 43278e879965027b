"""OpenAI Responses API client for meal image analysis."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI

from meal_lens.services.engine import AnalysisEngineClient, AnalysisRequest

RESPONSE_FORMAT_NAME = "meal_analysis"


@dataclass
class OpenAIAnalysisEngineClient(AnalysisEngineClient):
    """Analysis engine backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIAnalysisEngineClient":
        """Create an OpenAI analysis engine client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

    async def analyze(self, request: AnalysisRequest) -> dict[str, object]:
        """Run one structured-output call and decode its JSON answer."""
        response = await self.client.responses.create(**response_arguments(request))
        return parse_output(response.output_text)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def response_arguments(request: AnalysisRequest) -> dict[str, object]:
    """Map an analysis request onto ``responses.create`` keyword arguments."""
    arguments: dict[str, object] = {
        "model": request.model,
        "input": [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": request.prompt},
                    {"type": "input_image", "image_url": request.image_data_url},
                ],
            }
        ],
        "text": {
            "format": {
                "type": "json_schema",
                "name": RESPONSE_FORMAT_NAME,
                "strict": True,
                "schema": request.schema,
            }
        },
        "store": request.store,
    }
    if request.reasoning_effort:
        arguments["reasoning"] = {"effort": request.reasoning_effort}
    return arguments


def parse_output(output_text: str | None) -> dict[str, object]:
    if not output_text:
        raise RuntimeError("OpenAI returned an empty response")
    data = json.loads(output_text)
    if not isinstance(data, dict):
        raise RuntimeError("OpenAI returned a non-object response")
    return data
