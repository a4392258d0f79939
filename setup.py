import setuptools
import os

# Function to read the contents of requirements.txt
def get_requirements(file_path='requirements.txt'):
    with open(file_path, 'r') as f:
        # return requirements removing comments and empty lines
        return [line.strip() for line in f if line.strip() and not line.startswith('#')]

# Function to read the README file for the long description
def get_long_description(file_path='README.md'):
    if os.path.exists(file_path):
        with open(file_path, 'r', encoding='utf-8') as f:
            return f.read()
    # Fallback description if README.md doesn't exist
    return 'Single domain reconnaissance: WHOIS, SOA, addresses with reverse DNS, www, HTTP headers, SSL certificate, MX and TXT records.'

# Package Metadata
setuptools.setup(
    # How the package will be named (e.g., pip install domainenum)
    name="domainenum",
    version="1.0",
    description="Enumerate WHOIS, DNS, HTTP and SSL certificate information for a single domain using dnspython, python-whois, requests and cryptography.",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    license="MIT",

    # Package Configuration
    # The tool is three top-level modules: the CLI, the record extractors and the lookups
    py_modules=["domainenum", "record_toolkit", "lookups"],

    # Dependencies needed for the script to run
    install_requires=get_requirements(),
    extras_require={
        'test': ['pytest'],
    },

    # Command-Line Script Definition
    # This creates the 'domainenum' command that points to the main function
    entry_points={
        'console_scripts': [
            # command_name = module_name:function_name
            'domainenum = domainenum:main',
        ],
    },

    # Optional Classifiers (for PyPI)
    classifiers=[
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Networking",
        "Topic :: Internet :: Name Service (DNS)",
    ],
    python_requires='>=3.8',
)
