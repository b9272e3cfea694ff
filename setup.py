from setuptools import setup, find_packages

setup(
    name="mcp-cli",
    version="1.0.0",
    description="Generic MCP protocol client with STDIO sessions and a background daemon",
    author="phisanti",
    author_email="tisalon@outlook.com",
    license="MIT",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "typer>=0.9.0",
        "rich>=13.0.0",
        "prompt_toolkit>=3.0.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "mcp-cli=mcpcli.main:mcp_cli",
        ],
    },
    python_requires=">=3.10",
)
