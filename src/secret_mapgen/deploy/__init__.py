"""Contract deployment pipeline."""

from secret_mapgen.deploy.pipeline import DeploymentPipeline, find_log_value

__all__ = ["DeploymentPipeline", "find_log_value"]
