"""Unit tests for deterministic project construction (hermes.fallback)."""

from __future__ import annotations

import pytest

from hermes.fallback import (
    BACKEND_RULES,
    FRONTEND_RULES,
    AppCategory,
    classify,
    construct_default,
    match_technology,
    synthesize_scope,
)
from hermes.models import ConversationTurn, ModuleKind, Priority, RefinedProject


class TestClassify:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("A full-stack marketplace", AppCategory.FULLSTACK),
            ("mobile app with login and chat", AppCategory.MOBILE),
            ("An Android companion for my store", AppCategory.MOBILE),
            ("REST API for invoices", AppCategory.API),
            ("A backend service that sends emails", AppCategory.API),
            ("A personal website", AppCategory.WEB),
            ("Something to track my plants", AppCategory.WEB),
        ],
    )
    def test_categories(self, text: str, expected: AppCategory):
        assert classify(text) is expected

    @pytest.mark.unit
    def test_first_rule_wins(self):
        assert classify("mobile app with a REST API") is AppCategory.MOBILE

    @pytest.mark.unit
    def test_whole_words_only(self):
        assert classify("a rapid prototype for space travel") is AppCategory.WEB

    @pytest.mark.unit
    def test_case_insensitive(self):
        assert classify("MOBILE GAME") is AppCategory.MOBILE


class TestMatchTechnology:
    @pytest.mark.unit
    def test_vue_frontend(self):
        assert match_technology("built with Vue and Fastify", FRONTEND_RULES) == ["Vue.js"]

    @pytest.mark.unit
    def test_fastify_backend(self):
        assert match_technology("built with Vue and Fastify", BACKEND_RULES) == [
            "Node.js",
            "Fastify",
        ]

    @pytest.mark.unit
    def test_no_match(self):
        assert match_technology("plain idea", FRONTEND_RULES) == []


class TestConstructDefault:
    @pytest.mark.unit
    def test_mobile_app(self):
        project = construct_default("mobile app with login and chat")

        assert isinstance(project, RefinedProject)
        assert project.architecture == "Mobile Application"
        assert project.technologies.frontend == ["React Native"]
        assert len(project.modules) == 3
        assert all(m.priority is Priority.HIGH for m in project.modules)
        assert [m.kind for m in project.modules] == [
            ModuleKind.FRONTEND,
            ModuleKind.BACKEND,
            ModuleKind.SHARED,
        ]

    @pytest.mark.unit
    def test_empty_text_still_valid(self):
        project = construct_default("")
        assert project.architecture == "Single Page Application (SPA)"
        assert project.technologies.database == "MongoDB"
        assert len(project.modules) == 3

    @pytest.mark.unit
    def test_database_detected(self):
        project = construct_default("an api backed by PostgreSQL")
        assert project.architecture == "REST API"
        assert project.technologies.database == "PostgreSQL"

    @pytest.mark.unit
    def test_round_trips_through_schema(self):
        project = construct_default("a web dashboard with react")
        assert RefinedProject.model_validate(project.model_dump()) == project


class TestSynthesizeScope:
    @pytest.mark.unit
    def test_uses_user_answers_only(self):
        turns = [
            ConversationTurn.system("prompt"),
            ConversationTurn.user("A mobile app for recipes"),
            ConversationTurn.assistant("Who is it for?"),
            ConversationTurn.user("Home cooks"),
        ]
        scope = synthesize_scope(turns)
        assert scope.startswith("Mobile Application: A mobile app for recipes")
        assert "- Home cooks" in scope
        assert "Who is it for?" not in scope
        assert "prompt" not in scope

    @pytest.mark.unit
    def test_no_answers(self):
        assert synthesize_scope([ConversationTurn.system("prompt")]) == "A web application."
