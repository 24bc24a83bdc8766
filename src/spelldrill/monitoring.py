"""Monitoring configuration for the spelling drill."""
from prometheus_client import Counter, start_http_server

# Game metrics
games_started = Counter(
    "spelldrill_games_started_total",
    "Total number of games started",
    ["origin"],  # fresh, restored
)

games_finished = Counter(
    "spelldrill_games_finished_total",
    "Total number of games that reached a final status",
    ["outcome"],  # correct, failed
)

# Answer metrics
answers = Counter(
    "spelldrill_answers_total",
    "Total number of answered words",
    ["outcome"],  # correct, failed
)

wrong_attempts = Counter(
    "spelldrill_wrong_attempts_total",
    "Total number of wrong letter inputs",
)

# Persistence metrics
restores = Counter(
    "spelldrill_restores_total",
    "Total number of attempts to resume a saved game",
    ["result"],  # resumed, discarded, none
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
