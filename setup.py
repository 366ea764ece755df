"""Setup configuration for community_analytics"""

from setuptools import setup, find_packages

setup(
    name="community-analytics-generator",
    version="0.1.0",
    description=(
        "Batch job computing pull-request review and issue-triage analytics "
        "for a GitHub organization."
    ),
    author="Community Analytics Generator Contributors",
    author_email="",
    python_requires=">=3.10",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "requests>=2.28.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=22.0",
            "flake8>=4.0",
            "mypy>=0.950",
        ],
    },
    entry_points={
        "console_scripts": [
            "community-analytics-generator=community_analytics.main:main",
        ],
    },
)
