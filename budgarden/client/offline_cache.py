"""
오프라인 캐시

마지막으로 동기화된 서버 상태를 고정 키 아래 JSON 파일로 보관한다.
- 쓰기: 매 동기화마다 통째로 교체 (임시 파일 작성 후 원자적 교체)
- 읽기: 파일이 없거나 손상되었으면 None
- 읽은 값은 표시용일 뿐, 어떤 변경 요청에도 사용되지 않는다
"""

import json
import logging
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError

from budgarden.schemas.cache import OfflineCacheSnapshot

logger = logging.getLogger(__name__)


class OfflineCache:
    def __init__(self, path: Union[str, Path], key: str = "budGarden_gameState"):
        self.path = Path(path)
        self.key = key

    def _load_store(self) -> Dict[str, Any]:
        try:
            store = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning(f"Offline cache at {self.path} is unreadable: {str(e)}")
            return {}
        return store if isinstance(store, dict) else {}

    def _save_store(self, store: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", delete=False, encoding="utf-8", dir=str(self.path.parent)
        ) as tmp:
            tmp.write(json.dumps(store, indent=2))
            tmp_path = Path(tmp.name)
        tmp_path.replace(self.path)

    def write(self, snapshot: OfflineCacheSnapshot) -> None:
        """해당 키의 값을 통째로 교체 (병합하지 않음)"""
        store = self._load_store()
        store[self.key] = snapshot.model_dump(mode="json")
        self._save_store(store)

    def read(self) -> Optional[OfflineCacheSnapshot]:
        blob = self._load_store().get(self.key)
        if blob is None:
            return None
        try:
            return OfflineCacheSnapshot.model_validate(blob)
        except ValidationError as e:
            logger.warning(f"Discarding corrupt offline cache entry {self.key}: {str(e)}")
            return None

    def clear(self) -> None:
        store = self._load_store()
        if store.pop(self.key, None) is not None:
            self._save_store(store)
