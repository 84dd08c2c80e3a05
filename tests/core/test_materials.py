"""Tests for study material generation."""

import random
import re

import pytest

from bizu.core.materials import (
    TOPICS,
    StudyMaterial,
    generate_material_content,
    generate_materials,
    normalize_material_type,
)
from bizu.llm.client import LLMResponseError


@pytest.fixture
def materials_llm_output():
    return [
        {
            "title": "Resumo: Atos Administrativos",
            "category": "Direito Administrativo",
            "type": "pdf",
            "duration": "15 min",
            "summary": "Atributos, elementos e extinção.",
        },
        {
            "title": "Aula: Inquérito Policial",
            "type": "VIDEO",
            "duration": "20 min",
            "summary": "Características do IP.",
        },
        {"category": "sem título"},
    ]


class TestGenerateMaterials:
    def test_enriches_materials(self, mock_llm_client, materials_llm_output):
        mock_llm_client.simple_json.return_value = materials_llm_output

        materials = generate_materials(3, mock_llm_client, topic="Processo Penal")

        assert len(materials) == 2
        assert materials[0].type == "PDF"
        assert materials[1].category == "Processo Penal"
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}", materials[0].updated_at)
        assert len({m.id for m in materials}) == 2
        assert all(m.content is None for m in materials)

    def test_random_topic(self, mock_llm_client, materials_llm_output):
        mock_llm_client.simple_json.return_value = materials_llm_output

        generate_materials(2, mock_llm_client, rng=random.Random(7))

        prompt = mock_llm_client.simple_json.call_args.kwargs["user_message"]
        assert any(topic in prompt for topic in TOPICS)

    @pytest.mark.parametrize("requested, expected", [(0, "1 materiais"), (99, "10 materiais")])
    def test_count_bounds(self, mock_llm_client, requested, expected):
        mock_llm_client.simple_json.return_value = []
        generate_materials(requested, mock_llm_client, topic="AFO")
        assert expected in mock_llm_client.simple_json.call_args.kwargs["user_message"]

    def test_unexpected_shape_raises(self, mock_llm_client):
        mock_llm_client.simple_json.return_value = "nada"
        with pytest.raises(LLMResponseError):
            generate_materials(3, mock_llm_client, topic="AFO")


class TestMaterialContent:
    def test_video_gets_script_hint(self, mock_llm_client):
        mock_llm_client.simple_chat.return_value = "# Roteiro\n..."
        material = StudyMaterial(id="m1", title="Inquérito", category="Penal", type="VIDEO")

        content = generate_material_content(material, mock_llm_client)

        assert content == "# Roteiro\n..."
        prompt = mock_llm_client.simple_chat.call_args.kwargs["user_message"]
        assert "roteiro" in prompt
        assert "Certo ou Errado" in prompt

    def test_empty_content_raises(self, mock_llm_client):
        mock_llm_client.simple_chat.return_value = "  "
        material = StudyMaterial(id="m1", title="x", category="y", type="PDF")
        with pytest.raises(LLMResponseError):
            generate_material_content(material, mock_llm_client)


class TestStudyMaterial:
    @pytest.mark.parametrize("raw, expected", [("article", "ARTICLE"), ("Video", "VIDEO"), ("podcast", "PDF"), (None, "PDF")])
    def test_normalize_type(self, raw, expected):
        assert normalize_material_type(raw) == expected

    def test_content_only_serialized_when_present(self):
        material = StudyMaterial(id="m1", title="t", category="c", type="PDF")
        assert "content" not in material.to_dict()
        material.content = "# texto"
        assert material.to_dict()["content"] == "# texto"

    def test_from_dict_accepts_wire_shape(self):
        material = StudyMaterial.from_dict(
            {"id": "m1", "title": "t", "category": "c", "type": "video", "updatedAt": "2026-01-02"}
        )
        assert material.type == "VIDEO"
        assert material.updated_at == "2026-01-02"
