"""
Tests for scorm_quiz/server/api_server.py
"""

import pytest
from fastapi.testclient import TestClient

from conftest import correct_position, make_question, wrong_position
from scorm_quiz.core.models import SessionPhase, SessionSettings
from scorm_quiz.core.services.quiz_engine import QuizEngine
from scorm_quiz.core.session_controller import SessionController
from scorm_quiz.server.api_server import create_api_app, serialize_display_state


@pytest.fixture
def controller(four_questions, connected_host, clock):
    engine = QuizEngine()
    engine.load_bank(four_questions)
    engine.set_shuffle_seed(3)
    session = SessionController(engine, connected_host, settings=SessionSettings(), clock=clock)
    session.start()
    return session


@pytest.fixture
def client(controller):
    return TestClient(create_api_app(controller))


class TestPages:
    def test_learner_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "ScormQuiz" in response.text
        assert "__POLL_INTERVAL_MS__" not in response.text

    def test_initial_state(self, client):
        payload = client.get("/state").json()
        assert payload["phase"] == "START"
        assert payload["total_questions"] == 4
        assert payload["options"] == []
        assert payload["outcome"] is None


class TestEvents:
    def test_begin_then_answer(self, client, controller, clock):
        payload = client.post("/begin").json()
        assert payload["phase"] == "QUIZZING"
        assert payload["question_number"] == 1
        assert payload["question_html"] == "<p>Question 1?</p>\n"
        assert len(payload["options"]) == 4

        options = controller.get_display_state().shuffled_options
        response = client.post("/answer", json={"selected_option_index": correct_position(options)})
        assert response.status_code == 200
        assert response.json()["is_correct"] is True

        state = client.get("/state").json()
        assert state["feedback"]["is_correct"] is True
        clock.advance(1.5)
        state = client.get("/state").json()
        assert state["question_number"] == 2
        assert state["feedback"] is None
        assert state["score"] == 1

    def test_begin_twice_conflicts(self, client):
        client.post("/begin")
        assert client.post("/begin").status_code == 409

    def test_answer_while_feedback_pending(self, client, controller):
        client.post("/begin")
        options = controller.get_display_state().shuffled_options
        client.post("/answer", json={"selected_option_index": wrong_position(options)})
        response = client.post("/answer", json={"selected_option_index": correct_position(options)})
        assert response.status_code == 409

    def test_answer_before_begin(self, client):
        assert client.post("/answer", json={"selected_option_index": 0}).status_code == 409

    @pytest.mark.parametrize("body", [{"selected_option_index": 9}, {"selected_option_index": "x"}, {}])
    def test_invalid_answer_payload(self, client, body):
        client.post("/begin")
        assert client.post("/answer", json=body).status_code == 422

    def test_retry_requires_results(self, client):
        assert client.post("/retry").status_code == 409

    def test_full_attempt_and_retry(self, client, controller, clock):
        client.post("/begin")
        for _ in range(4):
            options = controller.get_display_state().shuffled_options
            client.post("/answer", json={"selected_option_index": correct_position(options)})
            clock.advance(1.5)
        state = client.get("/state").json()
        assert state["phase"] == "RESULTS"
        assert state["outcome"]["percentage"] == 100
        assert state["outcome"]["passed"] is True

        payload = client.post("/retry").json()
        assert payload["phase"] == "START"
        assert payload["score"] == 0


class TestLifespan:
    def test_shutdown_finishes_lms_session(self, controller, lms_api):
        with TestClient(create_api_app(controller)) as client:
            assert client.get("/state").status_code == 200
        assert lms_api.calls.count("LMSFinish") == 1

    def test_startup_leaves_loading(self, connected_host, clock):
        session = SessionController.from_questions([make_question(1)], connected_host, clock=clock)
        with TestClient(create_api_app(session)):
            assert session.phase is SessionPhase.START


class TestSerialization:
    def test_markdown_and_media(self, connected_host, clock):
        question = make_question(1, images=["img/a.png", None, "https://cdn.example/c.png", None])
        session = SessionController.from_questions([question], connected_host, clock=clock)
        session.start()
        session.on_begin()
        payload = serialize_display_state(session.get_display_state(), has_media=True)
        urls = sorted(filter(None, (option["image_url"] for option in payload["options"])))
        assert urls == ["/media/img/a.png", "https://cdn.example/c.png"]
        assert all("<p>" not in option["label_html"] for option in payload["options"])
