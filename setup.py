from setuptools import setup, find_packages

setup(
    name="llm-chat-kit",
    version="0.1.0",
    description="Chat client and streaming relay for hosted and local LLM providers",
    author="Mudakka",
    license="CC BY-NC 4.0",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "fastapi>=0.111.0",
        "uvicorn[standard]>=0.22.0",
        "pydantic>=2.7.1",
        "python-dotenv>=1.0.1",
        "requests>=2.31.0",
        "PyYAML>=6.0",
        "SQLAlchemy>=2.0",
        "google-generativeai>=0.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "httpx>=0.27",
        ],
    },
    entry_points={
        "console_scripts": [
            "llm-chat-kit=llm_chat_kit.app:main",
            "llm-chat-kit-client=llm_chat_kit.client.cli:main",
        ],
    },
    include_package_data=True,
    package_data={"llm_chat_kit": ["config.yaml"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Creative Commons Attribution Non-Commercial 4.0 International License",
        "Operating System :: OS Independent",
    ],
)
