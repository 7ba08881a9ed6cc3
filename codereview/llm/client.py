"""
LLM Client（基于 OpenAI SDK，对接任意 OpenAI-compatible endpoint）。

目标：
- **尽量薄**：只做协议适配与错误处理
- **显式依赖**：httpx.Client 由调用方创建并注入（不使用全局单例）
- **不重试**：max_retries=0，固定超时；失败由 orchestrator 按 batch 降级
- **确定性**：固定 system prompt、低 temperature、固定 seed
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx
from openai import APIStatusError, OpenAI, OpenAIError
from pydantic import BaseModel

from codereview.review.models import ReviewResponse
from codereview.review.prompt import parse_review_response

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0
SYSTEM_PROMPT = (
    "You are a deterministic senior software engineer performing a code review. "
    "You must produce IDENTICAL results for identical inputs."
)
SEED = 1234
TOP_P = 0.5
MAX_TOKENS = 8000


class ChatMessage(BaseModel):
    """OpenAI chat message 的最小结构。"""

    role: str
    content: str


class ReviewDispatchError(RuntimeError):
    """单次 review 请求失败（网络错误、非 2xx 状态、空响应）。"""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


def _normalize_base_url(base_url: str) -> str:
    return base_url.rstrip("/")


class ReviewLLMClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        http_client: httpx.Client,
        temperature: float = 0.0,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        prompt_log_path: str | None = None,
    ) -> None:
        """
        - api_key: endpoint 的 API key
        - base_url: OpenAI-compatible base URL（请求发往 `{base_url}/chat/completions`）
        - http_client: 由调用方管理生命周期的 httpx.Client
        - prompt_log_path: 可选，发送前把完整 prompt 写入该文件，便于排查
        """
        self._base_url = _normalize_base_url(base_url=base_url)
        self._model = model
        self._temperature = temperature
        self._prompt_log_path = prompt_log_path
        self._client = OpenAI(
            api_key=api_key.strip(),
            base_url=self._base_url,
            http_client=http_client,
            timeout=timeout,
            max_retries=0,
        )

    def complete_text(self, messages: Sequence[ChatMessage]) -> str:
        """
        单次 chat completion，返回第一个 choice 的文本。

        出错统一转成 `ReviewDispatchError`，便于上游按 batch 降级。
        """
        try:
            logger.info(f"LLM request: model={self._model}, messages={len(messages)} msg(s)")
            response = self._client.chat.completions.create(
                model=self._model,
                messages=[m.model_dump() for m in messages],
                temperature=self._temperature,
                top_p=TOP_P,
                presence_penalty=0.0,
                max_tokens=MAX_TOKENS,
                seed=SEED,
            )
        except APIStatusError as exc:
            body = exc.response.text
            logger.error(f"LLM API error: status={exc.status_code} body={body}")
            raise ReviewDispatchError(
                f"ai request failed: {exc.status_code} - {body}",
                status_code=exc.status_code,
                body=body,
            ) from exc
        except (OpenAIError, httpx.HTTPError) as exc:
            logger.error(f"LLM request error: {exc}")
            raise ReviewDispatchError(f"send request: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            logger.error("LLM returned empty content")
            raise ReviewDispatchError("empty AI response")

        logger.info(f"LLM response: {len(content)} chars")
        return str(content)

    def review(self, prompt: str) -> ReviewResponse:
        self._log_prompt(prompt=prompt)
        messages = [
            ChatMessage(role="system", content=SYSTEM_PROMPT),
            ChatMessage(role="user", content=prompt),
        ]
        return parse_review_response(self.complete_text(messages=messages))

    def _log_prompt(self, prompt: str) -> None:
        if not self._prompt_log_path:
            return
        try:
            with open(self._prompt_log_path, "w", encoding="utf-8") as f:
                f.write(prompt)
        except OSError as exc:
            logger.warning(f"Failed to log AI prompt: {exc}")
            return
        logger.info(f"AI prompt logged to {self._prompt_log_path}")
