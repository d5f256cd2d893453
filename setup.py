from setuptools import setup, find_packages
import re

# Read version from paystub/__init__.py
with open('paystub/__init__.py') as f:
    version = re.search(r'^__version__ = ["\']([^"\']+)["\']', f.read(), re.MULTILINE).group(1)

setup(
    name='paystub',
    version=version,
    packages=find_packages(include=['paystub', 'paystub.*']),
    package_data={
        'paystub.sdk.taxes': ['rules/*.yaml'],
    },
    install_requires=[
        'PyYAML>=6.0',
        'click>=8.0',
        'pydantic>=2.0.0',
        'rich>=13.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'paystub=paystub.cli.__main__:main',
        ],
    },
    author='Personal',
    description='Payroll tax engine for pay stub generation.',
    python_requires='>=3.10',
)
