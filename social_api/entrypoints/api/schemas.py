"""リクエストスキーマ共通部品

リクエストボディは camelCase で受け取り、Python 側では snake_case 属性で扱う。
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """camelCase のエイリアスを持つリクエストモデルの基底"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        """指定されたフィールドだけを camelCase dict で返す（未指定は含めない）"""
        return self.model_dump(by_alias=True, exclude_unset=True)
