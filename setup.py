"""
Setup script for the Bayesian regression tutorials package
"""

from setuptools import setup, find_packages
import os

# Long description from the design notes
def read_file(filename):
    filepath = os.path.join(os.path.dirname(__file__), filename)
    for enc in ('utf-8-sig', 'latin-1'):
        try:
            with open(filepath, encoding=enc) as f:
                return f.read()
        except (UnicodeDecodeError, LookupError, FileNotFoundError):
            continue
    return ''

setup(
    name='bayesreg-tutorials',
    version='0.3.0',
    description='Synthetic regression data and MCMC posterior diagnostics for Bayesian regression tutorials',
    long_description=read_file('DESIGN.md'),
    long_description_content_type='text/markdown',
    license='MIT',

    # Package discovery from src/
    packages=find_packages(where="src"),
    package_dir={"": "src"},

    python_requires='>=3.8',

    install_requires=[
        'numpy>=1.22.0',
        'scipy>=1.7.0',
        'matplotlib>=3.5.0',
        'seaborn>=0.11.0',
        'pandas>=1.3.0',
        'tqdm>=4.62.0',
    ],

    extras_require={
        'bayesian': [
            'pymc>=5.10.0',  # Modern PyMC (v5+)
            'arviz>=0.12.0',
            'pytensor>=2.18.0',  # Modern backend
        ],
        'dev': [
            'pytest>=7.0.0',
            'pytest-cov>=3.0.0',
            'black>=22.0.0',
            'flake8>=4.0.0',
        ],
        'all': [
            'pymc>=5.10.0',
            'arviz>=0.12.0',
            'pytensor>=2.18.0',
            'pytest>=7.0.0',
            'pytest-cov>=3.0.0',
            'black>=22.0.0',
            'flake8>=4.0.0',
        ],
    },

    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Science/Research',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Topic :: Scientific/Engineering :: Mathematics',
    ],

    keywords='bayesian-inference mcmc gelman-rubin regression logistic-regression tutorial',
)
