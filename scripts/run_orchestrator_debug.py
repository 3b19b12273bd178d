import asyncio
import json
import pathlib
import sys
import traceback

# Ensure local `src` directory is on sys.path so imports work when running this script directly.
sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

try:
    from agentchain.config import ProjectConfig
    from agentchain.logging_config import setup_logging
    from agentchain.project import Project

    setup_logging(verbose=True)
    config_path = sys.argv[1] if len(sys.argv) > 1 else "examples/configs/demo.yaml"
    project = Project(ProjectConfig.from_file(config_path))
    print("Agents:", [agent.id for agent in project.agents])
    print("Handlers available:", project.handler_registry.names())
    orchestrator = project.build_orchestrator()
    print("Plan:", orchestrator.plan())
    print("Running...")
    report = asyncio.run(orchestrator.run())
    print(json.dumps(report.summary.to_dict(), indent=2))
except Exception:
    traceback.print_exc()
