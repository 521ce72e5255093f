"""vscode-deployer: on-demand code-server instances on a local container engine."""

__version__ = "0.1.0"
