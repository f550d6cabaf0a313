from setuptools import setup, find_namespace_packages

setup(
    name="bookshare",
    version="0.1.0",
    packages=find_namespace_packages(include=['api*', 'cli*', 'core*', 'migrations*']),
    include_package_data=True,
    install_requires=[
        "Click",
        "SQLAlchemy>=2.0",
        "alembic",
        "fastapi",
        "uvicorn",
        "pydantic>=2",
        "python-multipart",  # UploadFile form parsing
        "requests",
        "Pillow",
        "Werkzeug",
    ],
    extras_require={
        "test": [
            "pytest",
            "httpx",  # FastAPI TestClient
        ],
    },
    entry_points={
        "console_scripts": [
            "bookshare=cli.main:main",
        ],
    },
)
