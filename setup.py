from setuptools import setup

# Read version from portexec/VERSION
with open('portexec/VERSION') as f:
    VERSION = f.read().strip()

setup(
    name='portexec',
    version=VERSION,
    description='Inspect TCP/UDP connections, map them to processes and kill them safely',
    long_description=open('README.md', encoding='utf-8').read(),
    long_description_content_type='text/markdown',
    license='MIT',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Topic :: System :: Networking :: Monitoring',
        'Topic :: System :: Systems Administration',
    ],
    python_requires='>=3.7',
    packages=['portexec'],
    package_data={'portexec': ['VERSION']},
    install_requires=[
        'psutil',
        'pyyaml',
    ],
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'portexec=portexec:cli_entry',
        ],
    },
)
