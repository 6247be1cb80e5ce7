from __future__ import annotations

from dataclasses import dataclass
from string import Template
from typing import Optional

API_TYPES: tuple[str, ...] = ("REST", "GraphQL", "gRPC")
DEFAULT_AUTOMATION_PATH = "/path/to/automation"
DEFAULT_ENDPOINT_PATH = "/api/v1/endpoint"

_REST = Template("""
// Test file location: $automation_path/tests/api/
// Generated test template for $service - $method_label endpoint

import { test, expect } from '@playwright/test';
import { APIRequestContext } from '@playwright/test';

test.describe('$service API Tests', () => {
  let apiContext: APIRequestContext;

  test.beforeAll(async ({ playwright }) => {
    apiContext = await playwright.request.newContext({
      baseURL: process.env.API_BASE_URL,
      extraHTTPHeaders: {
        'Authorization': `Bearer $${process.env.API_TOKEN}`,
        'Content-Type': 'application/json',
      },
    });
  });

  test.afterAll(async () => {
    await apiContext.dispose();
  });

  test('$method $path - should return success', async () => {
    const response = await apiContext.$method_lower('$path');

    expect(response.ok()).toBeTruthy();
    expect(response.status()).toBe(200);

    const body = await response.json();
    // Add assertions based on expected response structure
    expect(body).toHaveProperty('data');
  });

  test('$method $path - should handle invalid request', async () => {
    const response = await apiContext.$method_lower('$path/invalid');

    expect(response.status()).toBe(404);
  });

  test('$method $path - should require authentication', async ({ playwright }) => {
    const unauthContext = await playwright.request.newContext({
      baseURL: process.env.API_BASE_URL,
    });

    const response = await unauthContext.$method_lower('$path');
    expect(response.status()).toBe(401);
  });
});
""")

_GRAPHQL = Template("""
// Test file location: $automation_path/tests/graphql/
// Generated test template for $service - GraphQL endpoint

import { test, expect } from '@playwright/test';

test.describe('$service GraphQL Tests', () => {
  const graphqlEndpoint = process.env.GRAPHQL_ENDPOINT || '/graphql';

  test('Query - should fetch data successfully', async ({ request }) => {
    const response = await request.post(graphqlEndpoint, {
      data: {
        query: `
          query GetData {
            data {
              id
              name
            }
          }
        `,
      },
    });

    expect(response.ok()).toBeTruthy();
    const body = await response.json();
    expect(body.errors).toBeUndefined();
    expect(body.data).toBeDefined();
  });

  test('Mutation - should create data successfully', async ({ request }) => {
    const response = await request.post(graphqlEndpoint, {
      data: {
        query: `
          mutation CreateData($$input: DataInput!) {
            createData(input: $$input) {
              id
              name
            }
          }
        `,
        variables: {
          input: {
            name: 'Test Data',
          },
        },
      },
    });

    expect(response.ok()).toBeTruthy();
    const body = await response.json();
    expect(body.errors).toBeUndefined();
  });
});
""")

_GRPC = Template("""
// Test file location: $automation_path/tests/grpc/
// Generated test template for $service - gRPC endpoint

import * as grpc from '@grpc/grpc-js';
import * as protoLoader from '@grpc/proto-loader';
import { expect } from 'chai';

describe('$service gRPC Tests', () => {
  let client: any;

  before(() => {
    const packageDefinition = protoLoader.loadSync('path/to/service.proto');
    const proto = grpc.loadPackageDefinition(packageDefinition);

    client = new (proto as any).ServiceName(
      process.env.GRPC_ENDPOINT || 'localhost:50051',
      grpc.credentials.createInsecure()
    );
  });

  after(() => {
    client.close();
  });

  it('should call RPC method successfully', (done) => {
    client.methodName({ field: 'value' }, (err: Error | null, response: any) => {
      expect(err).to.be.null;
      expect(response).to.have.property('result');
      done();
    });
  });

  it('should handle errors gracefully', (done) => {
    client.methodName({ invalidField: 'value' }, (err: Error | null, response: any) => {
      expect(err).to.not.be.null;
      done();
    });
  });
});
""")

_BY_TYPE = {"REST": _REST, "GraphQL": _GRAPHQL, "gRPC": _GRPC}


@dataclass(frozen=True)
class RenderedTemplate:
    service: str
    api_type: str
    http_method: Optional[str]
    automation_repo_path: str
    path: str
    text: str


def render_test_template(
    service: str,
    api_type: str,
    http_method: Optional[str] = None,
    automation_repo_path: str = "",
    path: str = DEFAULT_ENDPOINT_PATH,
) -> RenderedTemplate:
    """
    Playwright/mocha boilerplate for a service's REST, GraphQL or gRPC API.

    Raises ValueError for an unsupported api_type.
    """
    template = _BY_TYPE.get(api_type)
    if template is None:
        raise ValueError(f"Unsupported API type {api_type!r}; expected one of {', '.join(API_TYPES)}")

    automation_path = automation_repo_path or DEFAULT_AUTOMATION_PATH
    method = (http_method or "GET").upper()
    text = template.substitute(
        service=service,
        automation_path=automation_path,
        method_label=http_method.upper() if http_method else "HTTP",
        method=method,
        method_lower=method.lower(),
        path=path,
    )
    return RenderedTemplate(
        service=service,
        api_type=api_type,
        http_method=http_method,
        automation_repo_path=automation_path,
        path=path,
        text=text,
    )
