from setuptools import setup, find_packages

setup(
    name="credscore",
    version="0.1.0",
    description="Portable identity-backed trust score from signed issuer credentials",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=["pynacl>=1.5.0", "python-json-logger>=3.1"],
    extras_require={"dev": ["pytest>=7.0", "pytest-asyncio>=0.21"]},
    entry_points={"console_scripts": ["credscore=credscore.cli:main"]},
    python_requires=">=3.9",
    license="CC0-1.0",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Security :: Cryptography",
        "Topic :: Office/Business :: Financial",
        "License :: CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
        "Programming Language :: Python :: 3",
    ],
    keywords="credentials trust score collateral lending ed25519",
)
