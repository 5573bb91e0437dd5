from setuptools import setup, find_packages

setup(
    name="rabbit-stress",
    version="0.1.0",
    description="Load generator for RabbitMQ exchange/binding topologies",
    author="adamfilli",
    packages=find_packages(include=["rabbitstress", "rabbitstress.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
        "pika",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "rabbit-stress=rabbitstress.cli:main",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
