# setup.py
from setuptools import setup, find_packages

setup(
    name="product_scout",
    version="0.1.0",
    description="ProductScout: поиск страниц товаров, сопоставление моделей и извлечение полей",
    packages=find_packages(exclude=["tests", "tests.*"]),  # автоматически найдёт папку product_scout
    package_data={"product_scout": ["templates/*.j2"]},
    install_requires=[
        "aiohttp>=3.9",
        "beautifulsoup4>=4.12",
        "lxml>=5.0",
        "pydantic>=2.5",
        "PyYAML>=6.0",
        "click>=8.1",
        "Jinja2>=3.1",
        "openai>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["product-scout=product_scout.cli:cli"],
    },
    python_requires=">=3.11",
)
