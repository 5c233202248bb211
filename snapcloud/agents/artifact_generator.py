"""
Artifact Generators — ordered tasks to diagram, template and cost estimate.

- LLMArtifactGenerator: one completion, answer parsed from fenced blocks
- StaticArtifactGenerator: fixed reference blueprint for demos and offline runs
"""

import logging
from typing import List

from snapcloud.orchestrator.errors import GenerationError, ProviderError

from .base import ArtifactGenerator, CompletionProvider, GeneratedArtifacts
from .extraction import extract_code_block, extract_markdown_table, parse_cost_json

logger = logging.getLogger(__name__)

GENERATE_SYSTEM_PROMPT = (
    "You are SnapCloud AI, an expert AWS solutions architect. "
    "You design secure, scalable and cost-aware AWS architectures."
)

GENERATE_PROMPT = """Design an AWS architecture that implements the following tasks, in order:
{tasks}

Produce exactly these four parts, in this order, each in its own markdown code block:
1. ```mermaid
<flowchart TD diagram of the architecture>
```
2. ```yaml
<CloudFormation template>
```
3. ```json
{{"totalMonthlyCost": <number>, "currency": "USD", "region": "<region>",
  "breakdown": [{{"service": "<name>", "monthlyCost": <number>}}]}}
```
4. ```markdown
| Service | Type | Quantity | Monthly Cost |
|---------|------|----------|--------------|
```"""


class LLMArtifactGenerator(ArtifactGenerator):
    """Artifact generation through a generative model."""

    def __init__(self, provider: CompletionProvider):
        self.provider = provider

    def build_prompt(self, tasks: List[str]) -> str:
        numbered = "\n".join(f"{i}. {task}" for i, task in enumerate(tasks, start=1))
        return GENERATE_PROMPT.format(tasks=numbered)

    async def generate(self, tasks: List[str]) -> GeneratedArtifacts:
        try:
            answer = await self.provider.complete(
                self.build_prompt(tasks),
                system=GENERATE_SYSTEM_PROMPT,
            )
        except ProviderError as e:
            raise GenerationError(f"Artifact generator unreachable: {e.message}") from e

        return self.parse_answer(answer)

    def parse_answer(self, answer: str) -> GeneratedArtifacts:
        """Extract the artifacts from a model answer."""
        diagram = extract_code_block(answer, "mermaid")
        if diagram is None:
            raise GenerationError("Model answer contains no mermaid diagram block")

        template = extract_code_block(answer, "yaml", "yml")
        if template is None:
            raise GenerationError("Model answer contains no CloudFormation YAML block")

        warnings = []
        cost_json, warning = parse_cost_json(answer)
        if warning:
            logger.warning(f"Cost estimation degraded: {warning}")
            warnings.append(warning)

        table_source = extract_code_block(answer, "markdown", "md") or answer
        cost_table = extract_markdown_table(table_source)

        return GeneratedArtifacts(
            diagram=diagram,
            template=template,
            cost_json=cost_json,
            cost_table=cost_table,
            warnings=warnings,
        )


REFERENCE_DIAGRAM = """graph TD
    A["Users"] --> F["CloudFront CDN"]
    A --> B["Application Load Balancer"]
    B --> C["EC2 Auto Scaling Group"]
    C --> D["RDS MySQL Database"]
    C --> E["S3 Bucket (Static Assets)"]
    F --> E
    C --> G["ElastiCache Redis"]"""

REFERENCE_TEMPLATE = """AWSTemplateFormatVersion: '2010-09-09'
Description: 'AWS architecture generated by SnapCloud'

Parameters:
  EnvironmentName:
    Description: Environment name prefix
    Type: String
    Default: snapcloud
  DatabasePassword:
    Description: Master password for the RDS instance
    Type: String
    NoEcho: true

Resources:
  VPC:
    Type: AWS::EC2::VPC
    Properties:
      CidrBlock: 10.0.0.0/16
      EnableDnsHostnames: true
      EnableDnsSupport: true
      Tags:
        - Key: Name
          Value: !Sub ${EnvironmentName}-VPC

  ApplicationLoadBalancer:
    Type: AWS::ElasticLoadBalancingV2::LoadBalancer
    Properties:
      Name: !Sub ${EnvironmentName}-ALB
      Type: application
      Scheme: internet-facing

  Database:
    Type: AWS::RDS::DBInstance
    Properties:
      DBInstanceIdentifier: !Sub ${EnvironmentName}-db
      DBInstanceClass: db.t3.micro
      Engine: mysql
      EngineVersion: '8.0'
      MasterUsername: admin
      MasterUserPassword: !Ref DatabasePassword
      AllocatedStorage: 20
      StorageEncrypted: true

  S3Bucket:
    Type: AWS::S3::Bucket
    Properties:
      BucketName: !Sub ${EnvironmentName}-static-assets
      PublicAccessBlockConfiguration:
        BlockPublicAcls: true
        BlockPublicPolicy: true
        IgnorePublicAcls: true
        RestrictPublicBuckets: true

  CloudFrontDistribution:
    Type: AWS::CloudFront::Distribution
    Properties:
      DistributionConfig:
        Enabled: true
        Origins:
          - DomainName: !GetAtt S3Bucket.RegionalDomainName
            Id: S3Origin
            S3OriginConfig:
              OriginAccessIdentity: ''
        DefaultCacheBehavior:
          TargetOriginId: S3Origin
          ViewerProtocolPolicy: redirect-to-https

Outputs:
  LoadBalancerDNS:
    Description: DNS name of the load balancer
    Value: !GetAtt ApplicationLoadBalancer.DNSName"""

REFERENCE_COST = {
    "totalMonthlyCost": 156.50,
    "currency": "USD",
    "region": "us-east-1",
    "breakdown": [
        {"service": "EC2 Instances", "instanceType": "t3.micro", "quantity": 2, "monthlyCost": 15.00},
        {"service": "Application Load Balancer", "quantity": 1, "monthlyCost": 22.50},
        {"service": "RDS MySQL", "instanceType": "db.t3.micro", "storage": "20GB", "monthlyCost": 25.00},
        {"service": "S3 Storage", "storage": "100GB", "monthlyCost": 2.30},
        {"service": "CloudFront CDN", "dataTransfer": "1TB", "monthlyCost": 85.00},
        {"service": "ElastiCache Redis", "instanceType": "cache.t3.micro", "monthlyCost": 6.70},
    ],
}

REFERENCE_TABLE = """| Service | Type | Quantity | Monthly Cost |
|---------|------|----------|--------------|
| EC2 Instances | t3.micro | 2 | $15.00 |
| Load Balancer | ALB | 1 | $22.50 |
| RDS MySQL | db.t3.micro | 20GB | $25.00 |
| S3 Storage | Standard | 100GB | $2.30 |
| CloudFront | CDN | 1TB transfer | $85.00 |
| ElastiCache | cache.t3.micro | 1 | $6.70 |
| **TOTAL** | | | **$156.50/month** |"""


STATIC_BLUEPRINT_WARNING = "static reference blueprint; tasks not used"


class StaticArtifactGenerator(ArtifactGenerator):
    """
    Returns the reference three-tier web blueprint whatever the tasks.

    Used when no provider is configured; deterministic by construction.
    Every bundle carries STATIC_BLUEPRINT_WARNING so results are marked
    degraded.
    """

    async def generate(self, tasks: List[str]) -> GeneratedArtifacts:
        logger.warning(f"Returning reference blueprint, ignoring {len(tasks)} tasks")
        return GeneratedArtifacts(
            diagram=REFERENCE_DIAGRAM,
            template=REFERENCE_TEMPLATE,
            cost_json=_copy_cost(REFERENCE_COST),
            cost_table=REFERENCE_TABLE,
            warnings=[STATIC_BLUEPRINT_WARNING],
        )


def _copy_cost(cost: dict) -> dict:
    copied = dict(cost)
    copied["breakdown"] = [dict(item) for item in cost["breakdown"]]
    return copied
