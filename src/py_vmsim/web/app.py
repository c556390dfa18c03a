"""Flask application factory for the py-vmsim JSON API.

The ``create_app`` function returns a Flask app with two endpoints:

- ``GET /api/status`` — default configuration and available policies.
- ``POST /api/simulate`` — run a simulation and return every snapshot.
"""

from __future__ import annotations

from typing import Any

from flask import Flask, Response, jsonify, request

from py_vmsim.config import POLICY_NAMES, ConfigurationError, SimulationConfig
from py_vmsim.logging import Logger
from py_vmsim.process.programs import Program
from py_vmsim.simulation import Simulation

_HTTP_BAD_REQUEST = 400

# Requests may lower these below the app defaults but never raise them.
_CAPPED_FIELDS = ("max_ticks", "num_frames", "max_processes")


def _parse_programs(raw: Any) -> list[Program]:
    """Turn the ``programs`` field of a request into Program objects.

    Raises:
        ConfigurationError: If the field is missing or malformed.

    """
    if not isinstance(raw, list) or not raw:
        msg = "'programs' must be a non-empty list"
        raise ConfigurationError(msg)
    programs: list[Program] = []
    for i, entry in enumerate(raw, start=1):
        if not isinstance(entry, dict):
            msg = f"program {i} must be an object"
            raise ConfigurationError(msg)
        size = entry.get("memory_size")
        instructions = entry.get("instructions")
        if not isinstance(size, int) or not isinstance(instructions, list):
            msg = f"program {i} needs an integer 'memory_size' and an 'instructions' list"
            raise ConfigurationError(msg)
        if not all(isinstance(v, int) for v in instructions):
            msg = f"program {i} instructions must be integers"
            raise ConfigurationError(msg)
        programs.append(Program(memory_size=size, instructions=tuple(instructions)))
    return programs


def _check_caps(run_config: SimulationConfig, defaults: SimulationConfig) -> None:
    """Reject a request that raises a capped field above the app default.

    Raises:
        ConfigurationError: If any capped field exceeds its default.

    """
    for name in _CAPPED_FIELDS:
        limit = getattr(defaults, name)
        if getattr(run_config, name) > limit:
            msg = f"{name} may not exceed {limit}"
            raise ConfigurationError(msg)


def create_app(config: SimulationConfig | None = None) -> Flask:
    """Create and configure the Flask application.

    Args:
        config: Defaults for every simulation; request bodies may
            override individual fields.

    Returns:
        A configured Flask application ready to serve.

    """
    defaults = config if config is not None else SimulationConfig()
    app = Flask(__name__)

    @app.route("/api/status")
    def status() -> Response:  # pyright: ignore[reportUnusedFunction]
        """Return the default configuration and the policy names."""
        return jsonify({"config": defaults.to_dict(), "policies": list(POLICY_NAMES)})

    @app.route("/api/simulate", methods=["POST"])
    def simulate() -> tuple[Response, int] | Response:  # pyright: ignore[reportUnusedFunction]
        """Run a simulation and return its snapshots as JSON.

        Expects JSON body: ``{"programs": [...], "config": {...}}``

        Returns:
            JSON with ``ticks``, ``finished``, ``truncated``, ``stats``,
            and ``log`` fields.

        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or "programs" not in data:
            return jsonify({"error": "Missing 'programs' field"}), _HTTP_BAD_REQUEST

        overrides = data.get("config", {})
        if not isinstance(overrides, dict):
            return jsonify({"error": "'config' must be an object"}), _HTTP_BAD_REQUEST

        try:
            programs = _parse_programs(data["programs"])
            run_config = SimulationConfig.from_mapping({**defaults.to_dict(), **overrides})
            _check_caps(run_config, defaults)
            logger = Logger()
            sim = Simulation(programs, config=run_config, logger=logger)
        except ConfigurationError as e:
            return jsonify({"error": str(e)}), _HTTP_BAD_REQUEST

        snapshots = sim.run()
        return jsonify(
            {
                "ticks": [s.to_dict() for s in snapshots],
                "finished": sim.finished,
                "truncated": sim.truncated,
                "stats": sim.stats.to_dict(),
                "log": [str(e) for e in logger.entries],
            },
        )

    return app


def main() -> None:
    """Run the API development server.

    This is the ``py-vmsim-web`` console entry point.
    """
    app = create_app()
    app.run(debug=True, port=8080)
