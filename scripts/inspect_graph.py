#!/usr/bin/env python
"""지식 그래프 파일을 점검하는 스크립트.

저장된 그래프의 엔티티/관계 수를 요약하고, 무결성(중복 엔티티, 끊어진 관계,
중복 관계)을 검사합니다. 검색어를 주면 서버와 같은 규칙으로 엔티티를 찾습니다.

Usage:
    # 설정(KG_STORAGE_PATH 또는 홈 디렉토리)의 그래프 점검
    uv run python scripts/inspect_graph.py

    # 특정 경로의 그래프 점검
    uv run python scripts/inspect_graph.py --storage-path ./memory

    # 검색
    uv run python scripts/inspect_graph.py --search "alice python"
"""

import argparse
import asyncio
import sys
from collections import Counter
from pathlib import Path

from dotenv import load_dotenv

from knowledge_graph_server.config import get_settings
from knowledge_graph_server.knowledge.errors import PersistenceError
from knowledge_graph_server.knowledge.manager import entity_matches, tokenize_query
from knowledge_graph_server.schemas.graph import KnowledgeGraph
from knowledge_graph_server.storage.json_file import JsonFileStorage

load_dotenv()


def find_integrity_problems(graph: KnowledgeGraph) -> list[str]:
    """그래프 파일의 무결성 문제 목록을 반환.

    Args:
        graph: 파일에서 읽은 그래프 (관계 정리 전)

    Returns:
        사람이 읽을 수 있는 문제 설명 목록
    """
    problems = []

    name_counts = Counter(entity.name for entity in graph.entities)
    for name, count in name_counts.items():
        if count > 1:
            problems.append(f"중복 엔티티: {name} ({count}회)")

    names = set(name_counts)
    for relation in graph.relations:
        missing = [n for n in (relation.from_, relation.to) if n not in names]
        if missing:
            problems.append(
                f"끊어진 관계: {relation.from_} -[{relation.relation_type}]-> {relation.to} "
                f"(없는 엔티티: {', '.join(missing)})"
            )

    relation_counts = Counter(relation.key() for relation in graph.relations)
    for (source, target, relation_type), count in relation_counts.items():
        if count > 1:
            problems.append(f"중복 관계: {source} -[{relation_type}]-> {target} ({count}회)")

    return problems


async def inspect_graph(storage_path: Path | None, query: str | None) -> int:
    """그래프를 읽어 요약, 무결성 검사, 검색 결과를 출력.

    Returns:
        프로세스 종료 코드 (문제가 없으면 0)
    """
    storage = JsonFileStorage.from_settings(get_settings(), storage_path=storage_path)

    print("=" * 70)
    print("🔍 지식 그래프 점검")
    print("=" * 70)
    print(f"\n📁 파일: {storage.location}")

    try:
        graph = await storage.load()
    except PersistenceError as e:
        print(f"❌ 그래프를 읽을 수 없습니다: {e.message}")
        return 1

    print(f"   🔵 엔티티: {len(graph.entities)}개")
    print(f"   🔗 관계: {len(graph.relations)}개")
    observation_count = sum(len(entity.observations) for entity in graph.entities)
    print(f"   📝 관찰: {observation_count}개")

    type_counts = Counter(entity.entity_type for entity in graph.entities)
    if type_counts:
        print("\n📊 엔티티 타입:")
        for entity_type, count in type_counts.most_common(10):
            print(f"   - {entity_type}: {count}개")

    print("\n🩺 무결성 검사...")
    problems = find_integrity_problems(graph)
    if problems:
        for problem in problems:
            print(f"   ⚠️  {problem}")
    else:
        print("   ✅ 문제 없음")

    if query is not None:
        tokens = tokenize_query(query)
        matches = [entity for entity in graph.entities if entity_matches(entity, tokens)]
        print(f"\n🔎 검색 '{query}': {len(matches)}개")
        for entity in matches[:20]:
            print(f"   - {entity.name} ({entity.entity_type})")
        if len(matches) > 20:
            print(f"   ... 외 {len(matches) - 20}개")

    return 1 if problems else 0


def main() -> None:
    """메인 함수."""
    parser = argparse.ArgumentParser(description="Inspect a knowledge graph file")
    parser.add_argument("--storage-path", "-s", type=Path, default=None)
    parser.add_argument("--search", type=str, default=None, help="Search query")
    args = parser.parse_args()

    sys.exit(asyncio.run(inspect_graph(args.storage_path, args.search)))


if __name__ == "__main__":
    main()
