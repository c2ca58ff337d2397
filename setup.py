from setuptools import setup, find_packages

setup(
    name="tollgate",
    version="0.1.0",
    packages=find_packages(include=["tollgate", "tollgate.*"]),
    python_requires=">=3.11",
    install_requires=[
        "fastapi>=0.110",
        "starlette>=0.36",
        "pydantic>=2.5",
        "pydantic-settings>=2.1",
        "redis>=5.0",
        "python-jose>=3.3",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.25",
        ],
    },
)
