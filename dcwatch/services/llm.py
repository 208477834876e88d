import ollama
from dcwatch.config import settings
from dcwatch.services.logger import logger

class LLMService:
    def __init__(self, host: str = None, model: str = None, timeout: float = None):
        self.client = ollama.AsyncClient(
            host=host or settings.OLLAMA_BASE_URL,
            timeout=timeout or settings.HTTP_TIMEOUT * 6,
        )
        self.model = model or settings.OLLAMA_MODEL

    async def generate_json(self, prompt: str) -> str:
        """
        Asks the model for a single JSON object and returns the raw reply text.
        Parsing and validation are left to the caller. No retries: a failed
        call is dropped and the item is picked up again next cycle.
        """
        try:
            response = await self.client.chat(model=self.model, messages=[
                {'role': 'user', 'content': prompt}
            ], format='json', options={'temperature': 0.1})
            return response['message']['content']
        except Exception as e:
            logger.error(f"LLM Generation failed: {e}")
            raise
