"""
Sequential Monte Carlo Integration Engine.
References:
    Glasserman, P. (2003). Monte Carlo Methods in Financial Engineering. Springer.
    Chow, Y. S., & Robbins, H. (1965). On the Asymptotic Theory of Fixed-Width
    Sequential Confidence Intervals for the Mean. Ann. Math. Statist.
"""
from setuptools import setup, find_packages

setup(
    name="sequential-mc-integration",
    version="1.0.0",
    author="Jose Orlando Bobadilla Fuentes",
    description="Sequential MC integration with pilot/refill stopping rule and antithetic variates",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=["numpy>=1.24.0", "scipy>=1.10.0", "pandas>=2.0.0",
                      "matplotlib>=3.7.0"],
    extras_require={
        "dev": ["pytest>=7.4.0", "black", "flake8"],
    },
    entry_points={
        "console_scripts": ["mc-integrate = mcintegration.cli:main"]
    },
)
